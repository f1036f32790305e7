"""Resource, schema, external-name and provider configuration for Terraform-based provider generation."""

__version__ = "0.1.0"

__all__ = ["description", "schema", "externalname", "resource", "provider", "handler"]