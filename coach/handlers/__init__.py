"""
Handlers for UI protocol actions.

- session_handlers: session.start, session.stop, mode.switch, mic.mute
- message_handlers: audio.chunk, draft.update, message.send
- history_handlers: history.list, history.load, history.rename, history.delete

Each handler takes the raw action dict and the connection's orchestrator and
returns the message to send back, if any.
"""
