"""
Pydantic datamodels used by the MOODi server runtime.

- api_models: HTTP request/response schemas

Conversation messages themselves live in core.orchestrator.models.
"""
