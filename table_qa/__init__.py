"""Table QA Harness - execution history, stability waits and the evidence dashboard"""

__version__ = "1.0.0"
