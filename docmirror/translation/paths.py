"""Destination paths for translated documents."""

from __future__ import annotations

import posixpath
import re

_ASCII_NAME = re.compile(r"^[A-Za-z0-9._-]+$")
_LANG_SUFFIX = re.compile(r"\.(zh|cn|en|ja|ko|es|fr|de)\.(md|mdx)$")
_EXTENSION = re.compile(r"\.(md|mdx)$")

# Known documentation titles and their ASCII slugs
KNOWN_TERMS: dict[str, str] = {
    "安装指南": "installation-guide",
    "快速开始": "quick-start",
    "使用手册": "user-guide",
    "开发文档": "development-guide",
    "API 文档": "api-reference",
    "贡献指南": "contributing",
    "更新日志": "changelog",
    "许可证": "license",
    "常见问题": "faq",
    "配置说明": "configuration",
    "部署指南": "deployment-guide",
    "用户指南": "user-guide",
    "教程": "tutorial",
    "示例": "examples",
    "文档": "docs",
    "说明": "guide",
}


def normalize_file_name(file_name: str, base_language: str) -> str:
    """Map a non-ASCII document name to an ASCII slug where one is known.

    Names already made of basic Latin letters, digits, '.', '_' and '-' are
    returned unchanged, as are names with no known term.
    """
    if _ASCII_NAME.match(file_name):
        return file_name

    if file_name.startswith("README"):
        suffix = _LANG_SUFFIX.search(file_name)
        if suffix and suffix.group(1) in ("zh", "cn"):
            return f"README.{suffix.group(2)}"

    ext_match = _EXTENSION.search(file_name)
    ext = ext_match.group(1) if ext_match else "md"
    stem = _EXTENSION.sub("", file_name)

    # Longer terms first so "开发文档" wins over "文档"
    for term in sorted(KNOWN_TERMS, key=len, reverse=True):
        if term in stem:
            slug = KNOWN_TERMS[term]
            suffix = _LANG_SUFFIX.search(file_name)
            if suffix and suffix.group(1) != base_language:
                return f"{slug}.{suffix.group(1)}.{ext}"
            return f"{slug}.{ext}"

    return file_name


def translated_path(
    original_path: str,
    language: str,
    base_language: str,
    root: str = "translations",
) -> str:
    """Where the translation of original_path into language is written.

    Everything goes under ``{root}/{language}/`` with the original directory
    structure. Base-language output keeps its file name untouched.
    """
    directory, file_name = posixpath.split(original_path)
    if not file_name:
        file_name = "README.md"
    if language != base_language:
        file_name = normalize_file_name(file_name, base_language)
    return posixpath.join(root, language, directory, file_name)
