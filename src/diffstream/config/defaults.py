"""Starter .diffstream.toml template."""

DEFAULT_TOML = """\
# diffstream configuration
version = "1.0"

[limits]
# Non-positive values mean unlimited.
max_files = 0             # stop after this many files, drain the rest
max_file_lines = 0        # mark a file incomplete past this many hunk lines
max_line_chars = 0        # a longer line truncates its hunk

[output]
format = "terminal"       # terminal | json
show_lines = false

[log]
level = "WARNING"         # DEBUG | INFO | WARNING | ERROR | CRITICAL
"""
