"""
Conversation orchestration for MOODi.

Wraps each model-provider call (completion, moderation, expression
classification, speech) with its task prompt, input checks and output
normalisation.
"""
