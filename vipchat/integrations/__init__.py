# External collaborators: identity and message log
