"""Worked studies using the estimators and the Monte-Carlo harness."""
