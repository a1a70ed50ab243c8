# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Integration tests for resolver, reader and reloader working together."""
