"""
hackstore - flat-file persistence for hackathon entities.

Teams, projects, participants, mentors, feedback, progress and categories are
stored as comma-delimited text files, one per entity type, under a data
directory chosen at startup.
"""
