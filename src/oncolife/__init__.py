"""
Oncolife: Oncology Symptom Triage Assistant

A multi-turn conversation engine that screens oncology patients for
treatment-related symptoms, evaluates their answers against clinical
decision rules, escalates emergencies and summarizes the check-in for
the care team.
"""

__version__ = "0.1.0"
__author__ = "Oncolife Team"
