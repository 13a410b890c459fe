"""
OpsMedic diagnostic agent.

Runs diagnostic shell commands locally or over SSH, has a language model
interpret the output and iterates on its recommendations until the issue is
diagnosed.
"""

__version__ = "0.1.0"
