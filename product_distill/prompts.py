"""Prompt builders for the extraction and vision services."""

from __future__ import annotations

from typing import Optional

EXTRACTION_SYSTEM_PROMPT = (
    "You extract structured product data from distilled web page evidence. "
    "Respond with a single JSON object that validates against the JSON Schema given by the user. "
    "Do not wrap the object in prose or add commentary."
)

SUMMARY_SYSTEM_PROMPT = (
    "You summarize product web pages into factual notes. Exclude marketing language."
)


def power_rating_prompt(evidence: str, url: str) -> str:
    return f"""
Analyze the following text content from a product page and extract the product name and power rating information (watts, volts, amps).
Read all power ratings in the provided text (e.g. kwh, kwhr, kwhrs, v, kv, a, amps, kamps) before converting them to watts, volts, and amps accordingly.
If the power ratings are not explicitly stated, make an educated guess based on similar products.

Text content:
{evidence}

Use "{url}" as the url of the product page.
""".strip()


def product_name_prompt(content: str, title: Optional[str] = None) -> str:
    title_line = f"Page Title: {title}\n" if title else ""
    return (
        "Extract the exact product name from this content. Return the whole product name, "
        "for example 365 Watt Mono Bifacial Black SL45-60BGI/BHI-365V.\n"
        f"{title_line}Content: {content}"
    )


def summary_prompt(content: str) -> str:
    return f"""
Analyze this content and extract the following product details:
1. Technical specifications (key-value pairs like dimensions, weight, power output, etc.)
2. Pricing information
3. Reviews and ratings
4. Key features
5. Frequently asked questions
6. Where to buy information if available
7. Detailed description of the product

Content to analyze: {content}

Return a structured summary with each detail type separated from each other.
Focus on factual information and exclude marketing language.
""".strip()


def product_record_prompt(product_name: str, details: str) -> str:
    return f"""
Generate comprehensive product information for {product_name}.
Use this summarized content and specifications from multiple sources:

Content:
{details}

Generate a detailed response including:
1. Product name and description. (Description should be a detailed description of the product)
2. Ratings and reviews. (Should be related to the product)
3. Where to buy information. (Include the retailer, country, price and url)
4. Technical specifications as an array of label-value pairs
5. Frequently asked questions. (Should be technical questions or related to the product specifications)

Format specifications as an array of objects with label and value properties.
Ensure all specifications are included and all information is factual.
""".strip()


def reviews_prompt(snippets: str) -> str:
    return f"""
Extract exactly 5 customer reviews from these review snippets.
If author names are not available, generate plausible reviewer names.
Make sure ratings align with the review sentiment and fall between 1 and 5.

Review content to analyze:
{snippets}
""".strip()


def retailer_prompt(url: str) -> str:
    return f"Extract the retailer/store name from this URL. Return just the main store name: {url}"


def image_selection_prompt(product_name: str, count: int) -> str:
    return (
        f'Select the best product image for "{product_name}" considering clarity, quality, '
        f"and professional presentation. Return only the index (0-{count - 1})."
    )
