"""
FastAPI Application Package

This package contains the main FastAPI application and routing logic.
It serves as the entry point for the backend API, exposing the aggregated
spot-coin snapshot, kline retrieval and asset market data over REST.
"""
