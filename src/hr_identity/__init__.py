"""HR identity package.

Reconciles employee accounts with their HR profiles and manages the
token/session lifecycle bound to that identity. Organized by feature
modules (accounts, identity, tokens, sessions, auth) with a thin Flask
controller layer over service/repository layers.
"""
