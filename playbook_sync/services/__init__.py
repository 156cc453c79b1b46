"""Business logic services.

Import service modules directly (``from ..services.reconcile_service import
TaskReconciler``); this package does not re-export them so that repositories
can depend on the pure ``playbook_tree`` helpers without an import cycle.
"""
