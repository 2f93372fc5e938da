"""
Varnish Cache service application package.

Submodules:
- settings: persisted cache configuration document
- purge: PURGE client and the invalidation coordinator
- scheduling: recurring auto-purge task
- admin: authorization, anti-forgery tokens and admin notices
"""
