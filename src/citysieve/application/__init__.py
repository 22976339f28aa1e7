"""Application services orchestrating domain logic and collaborators."""
