"""
Todo Assistant backend package.

A FastAPI service exposing todo CRUD endpoints and a chat endpoint that turns
free-text messages into todo actions. The application lives in
todo_assistant.main (import path: todo_assistant.main.app).
"""

__version__ = "0.1.0"
