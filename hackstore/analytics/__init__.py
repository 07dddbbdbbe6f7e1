"""
Aggregate views over the stored entities.

Builds pandas DataFrames from store files and computes the summary counts
reported at startup (participants, active teams, projects in development).
"""
