COMPILATION_SYSTEM_PROMPT = """
You are an AI assistant that compiles tattoo collections into sellable products. From the collection data
you receive, generate the marketing assets for the collection:

1.  PDF (data URI): a PDF version of the collection formatted for easy reading and distribution.
2.  Web Version (URL): a responsive web version of the collection, accessible via a URL.
3.  Mini-Site (HTML): HTML for a simple mini-site that promotes and sells the collection.
4.  Promotional Files: links to promotional files (e.g., social media banners, ads).
5.  Marketing Copies: compelling copy to be used in ads, emails and product descriptions.
6.  Cover Art (data URI): cover art for the collection.
7.  3D Mockups: links to 3D mockups showcasing the collection in different contexts.

Make the assets effective for the collection's target audience. Marketing copies must never be empty.
"""


def render_compilation_prompt(request) -> str:
    lines = [
        f"Collection Name: {request.name}",
        f"Description: {request.description}",
        f"Target Audience: {request.target_audience}",
        "Modules:",
    ]
    if not request.modules:
        lines.append("- (no modules yet)")
    for module in request.modules:
        lines.append(
            f"- Module Name: {module.name}, Sub-description: {module.sub_description}, "
            f"Number of Images: {len(module.images)}"
        )
        for image in module.images:
            # Inline images are counted above; only links are worth repeating.
            if image.startswith(("http://", "https://")):
                lines.append(f"  - Image: {image}")
    return "\n".join(lines)
