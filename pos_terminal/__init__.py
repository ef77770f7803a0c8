# ==============================================================================
# pos_terminal - Point-of-sale terminal backend
# ==============================================================================
# Cart pricing, checkout and stock reconciliation with an inventory audit log.
#
#   from pos_terminal.main import create_app
#   from pos_terminal.app_container import AppContainer
# ==============================================================================

__version__ = '1.0.0'
