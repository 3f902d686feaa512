"""Multi-tenant restaurant service: tenant resolution and scan-gated comments."""
