"""Yumemachi Canvas - FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic request
models.  Prompt assembly, vendor calls and session transitions all live in
:mod:`yumemachi.core`; the routes here only translate between JSON and the
core types.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request validation.
"""
