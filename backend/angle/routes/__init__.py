# Routes package init
"""
Angle Backend — Routes Package
===============================

Route Inventory:
    - episodes.py:    GET /api/episodes, GET /api/episodes/{id}
    - categories.py:  GET /api/categories
    - sitemap.py:     GET /api/sitemap, GET /sitemap.xml
    - og_image.py:    GET /api/og-image, /api/og-image/{id},
                      /api/og-image/category/{category}
    - health.py:      GET /api/health
    - render.py:      GET /, /{category}, /episode/{id} and the
                      /api/render/... rewrite targets

Routes stay thin: read the request, call a service, shape the response.
render.py owns a catch-all segment and must be included last.
"""
