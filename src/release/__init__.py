"""Release Tagging

Semantic-release driven version generation and the floating release tags
(`latest`, `v<major>`, `next`, `develop`) that consumers of the action pin to.
"""
