"""
API Routers - Organized endpoint handlers for the Relocation API.

Each router handles a specific domain:
- transfers: Transfer request lifecycle
- exit_formalities: Exit Camp checklist, deport decision and airport drop
- disciplinary: Disciplinary actions and the exit trigger
- dashboard: Alerting counts
"""
