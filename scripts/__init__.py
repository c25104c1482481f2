"""
Utility Scripts.

Operational scripts for the provider layer:

- scrape_categories.py: Bootstrap the registry and dump every provider's categories as JSON

Run scripts with: python -m scripts.<script_name>
"""
