"""Provide prompt rendering for the review oracle.

Templates live under this directory, e.g. `prompts/grammar_check/*.j2` and
`prompts/grammar_check/system.md`.
"""
