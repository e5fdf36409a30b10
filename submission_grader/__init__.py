"""
Submission Grader - grading core for the test submission workflow.

This package computes per-question correctness, awarded marks and
aggregate scores for student submissions made of multiple-choice and
essay questions, and supports the follow-up manual essay grading step.
"""

__version__ = "1.0.0"
__author__ = "Submission Grader Team"
