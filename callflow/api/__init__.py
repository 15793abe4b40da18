"""API routers and middleware"""
