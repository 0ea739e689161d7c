"""LLM access package.

Module split:
    - `provider_config`: environment-driven provider and model configuration.
    - `client`: provider-specific HTTP transport and response parsing.
"""
