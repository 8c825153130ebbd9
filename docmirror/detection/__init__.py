from docmirror.detection.detector import ChangeDetector, DetectedFile, DetectionResult
from docmirror.detection.ignore import IgnoreRules, apply_ignore_rules, parse_rules
from docmirror.detection.language import detect_base_language, detect_language

__all__ = [
    "ChangeDetector",
    "DetectedFile",
    "DetectionResult",
    "IgnoreRules",
    "apply_ignore_rules",
    "detect_base_language",
    "detect_language",
    "parse_rules",
]
