"""
Unit tests package.

Contains unit tests for individual modules and functions in isolation.
Portal traffic is replaced by fake sessions or the Flask test client;
no test here opens a network socket.
"""
