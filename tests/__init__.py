"""
Tests for the orm_lifecycle package.

This directory contains unit tests for:
- The callback-chain engine (callbacks.py)
- The ModelCallbacks mixin (model_callbacks.py)
- Storage: relations, explain adapters, fixtures and the engine factory
- The setup_database script
"""
