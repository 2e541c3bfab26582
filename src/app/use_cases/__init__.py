"""
Use Cases

Organized into domain folders:
- tenants/: Tenant name normalization and duplicate merging
- accounts/: Account deletion, restore, retention sweep and profile sync
- diagnostics/: Reference validation after merges and deletions

Import from subdirectories.
"""
