"""
Use Cases

Organized into domain folders:
- auth/: Registration, login, 2FA verification, magic links, email verification, tokens
- two_factor/: 2FA management for the authenticated user
- users/: User lifecycle (soft delete, restore, purge)
- webhooks/: Webhook registry and delivery history

Import from subdirectories.
"""
