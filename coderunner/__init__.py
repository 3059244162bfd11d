"""Runs untrusted Python snippets, optionally against test cases, in a throwaway sandbox."""
