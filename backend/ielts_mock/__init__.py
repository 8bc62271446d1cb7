"""IELTS mock test scoring and band aggregation service."""
