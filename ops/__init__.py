"""Collaborator layer: the ops store and the action descriptors that reach it."""
