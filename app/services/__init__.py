# Services module
#
# Service classes are imported from their own modules
# (e.g. `from app.services.grn_service import GRNService`); models import
# app.services.state_machine, so nothing is re-exported here.
