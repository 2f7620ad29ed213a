"""ViewModel package for screen state and command surfaces.

Call context:
    ``cmsdash/web_ui/main.py`` and ``cmsdash/app/controller.py`` import
    concrete viewmodels from this package to bind page callbacks to state
    transitions.

Dependencies:
    Modules in this package depend on domain types and the use-case layer
    only. Store adapters stay outside and arrive through the controller.

Responsibilities:
    - Own the live record list, the add/edit form and pending notifications.
    - Turn form submissions into validated dispatcher calls.
    - Keep MVVM boundaries explicit by avoiding transport or persistence logic.
"""
