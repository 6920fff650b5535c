"""
Conversation client for MOODi.

Includes:
- MoodiApi: HTTP access to the MOODi server routes
- ConversationClient: per-session conversation + turn state machine
- AudioPlayer / AudioClip: single active narration handle
- layout: bubble placement, textarea sizing and expression transitions
- view: ChatView interface and the terminal implementation
"""
