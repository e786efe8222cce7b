"""Connector Google (Calendar, Drive, Sheets): notificações de watch channels."""
