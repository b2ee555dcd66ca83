"""blog/ -- Posts: domain rules, persistence and ownership-checked mutations.

Layer rule: blog/ imports only stdlib, third-party libraries and core/.
Ownership is decided on a plain user id handed in by the caller; blog/ never
imports from auth/ or api/.
"""
