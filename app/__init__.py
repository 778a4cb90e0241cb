"""
CareLink Healthcare Coordination

A FastAPI backend connecting patients, doctors and hospitals: appointment
booking with conflict detection, emergency SOS dispatch to nearby hospitals,
report upload with keyword triage and symptom-to-specialty routing.
"""

__version__ = "1.0.0"
