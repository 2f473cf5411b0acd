# topmark:header:start
#
#   project      : ControlFile
#   file         : __init__.py
#   file_relpath : src/controlfile/cli/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""ControlFile command-line interface (Click)."""
