# Services package init
"""
Angle Backend — Services Layer
===============================

What:  Everything between the HTTP routes and the database / filesystem.

Service Inventory:
    - EpisodeService:    read-only episode and category queries
    - EpisodeCache:      optional fixed-TTL snapshot of the episode list
    - SlugResolver:      URL segment → category label / virtual keyword
    - MetaTagRewriter:   content substitution for og:/twitter: meta tags
    - PageRenderer:      shell loading + per-page meta values
    - OgImageService:    1200×630 preview image rasterizing
    - SitemapService:    XML sitemap generation

Each module exposes a module-level singleton used by the routes; tests
construct their own instances with stubbed collaborators.
"""
