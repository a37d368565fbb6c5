"""
Automated Pull Request Pipeline

Runs a modification step on an isolated branch and proposes the result as a
GitHub Pull Request.
"""

__version__ = "0.1.0"
