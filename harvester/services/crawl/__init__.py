"""Paginated harvesting subsystem.

Structure:
- base.py: record types and the present-or-placeholder policy
- errors.py: typed failures (transport, decode, per-item)
- fetcher.py: httpx-backed page fetcher returning parsed HTML or JSON
- pagination.py: fixed-set and offset-increment drivers
- aggregator.py: lock-guarded record collection shared by workers
- context.py: per-run context (fetcher, aggregator, counters)
- filters.py: admission predicates
- pipeline.py: CSV sink
- spiders/: catalog (HTML) and directory (JSON API) sources
- runner.py: CLI entrypoint

HTML is parsed with selectolax, JSON with httpx's decoder.
"""
