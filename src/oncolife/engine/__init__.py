"""
Oncolife Conversation Engine

Phase state machine, symptom modules, safety checks, validation and
summary synthesis for the symptom check-in.
"""
