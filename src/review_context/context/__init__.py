"""Collaborators that fetch review context from the outside world.

These modules talk to git, hosting-provider APIs (GitLab, GitHub), Jira
and the workspace filesystem, and map what they return onto the shared
schemas.
"""
