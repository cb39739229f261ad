"""Folio static site content pipeline.

This package loads blog posts written as Markdown with embedded components
(MDX-style), renders each post into an immutable document tree, and
assembles the rendered posts into a navigable site with a date-ordered
index, slug-derived routes, category listings and feeds.

The pipeline runs in three stages:
- Loading: content.ContentLoader splits frontmatter from the body.
- Rendering: renderers.Renderer parses the body (markup) and resolves
  components against a components.ComponentRegistry.
- Assembly: site.SiteAssembler builds the index and routes; build.SiteWriter
  writes HTML pages, index.json and feeds.

The main entry point is the CLI module.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
