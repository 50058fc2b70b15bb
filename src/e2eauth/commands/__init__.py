"""Built-in CLI sub-commands for e2eauth.

* :mod:`~e2eauth.commands.token` -- ``token``, ``bearer``, ``user-token``,
  ``login`` and ``logout``, registered directly on the root app.
* :mod:`~e2eauth.commands.config` -- the ``config`` group for inspecting
  resolved settings.
"""
