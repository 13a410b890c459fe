"""
OpsMedic feature modules: command policy, execution, SSH, troubleshooting workflow and reports.
"""
