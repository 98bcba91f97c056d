"""
Publishing app.

Client, payload presenters and publishers for the publishing API.
"""
