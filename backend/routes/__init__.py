"""HTTP routers: branding API and Clerk webhooks."""
