"""formflow_server — FastAPI REST API for the form navigation SDK.

Exposes the FormEngine as a stateless HTTP API: browse authored forms,
open a respondent session, then answer or step back one step at a time.
"""
