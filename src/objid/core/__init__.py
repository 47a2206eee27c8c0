"""Domain services: backend client, workspace, collisions, polling, assignment, state."""
