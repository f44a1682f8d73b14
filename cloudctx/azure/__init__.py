"""
Azure subscription management through the Azure CLI.
"""

from .provider import AzureProvider
