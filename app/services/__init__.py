"""Domain services: credential store, tokens, authorization and auth workflows."""
