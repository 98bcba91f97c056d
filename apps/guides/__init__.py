"""
Guides app: guides, their versioned editions and the approval workflow.
"""
