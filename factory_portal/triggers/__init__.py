"""Change-trigger handlers: one function per watched collection mutation."""
