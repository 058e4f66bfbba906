"""
Export pipeline: CSV, XLSX and PDF renderings of a ledger.

Import from the submodules (fintrack.export.pipeline, ...). This package
module stays empty so the analytics layer can use the shared formatting
helpers without pulling in the renderers.
"""
