"""Lockstep: release every package of a monorepo under one version."""
