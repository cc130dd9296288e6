"""
mdconcat - A tool for concatenating source trees into one Markdown file.

This package provides functionality to walk one or more directory trees,
select files by extension while honoring excluded directory names and
.gitignore patterns, and write their contents into a single Markdown
document for use with large language models.
"""

__version__ = "0.2.0"
__author__ = "mdconcat contributors"
