"""Inpatient application for the hospital administration backend.

This package holds the ward, team, doctor, patient, treatment and audit
models together with the services enforcing placement rules and the
API views exposing them.
"""
