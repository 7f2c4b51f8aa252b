"""
Services module.

- bookies_api_service: upstream odds provider client
- odds_format: fractional/decimal odds conversion
- records: normalized records passed between client, sync and repositories
- sync: game and live-odds synchronizers
"""
