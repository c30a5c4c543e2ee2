"""
Prompt templates for counterfeit assessment.
"""

from pipeline.models import Listing

NO_DESCRIPTION = "No description provided"


def build_counterfeit_prompt(listing: Listing) -> str:
    """Evaluation prompt for one hockey stick listing"""
    return f"""You are an expert at identifying counterfeit hockey sticks. Analyze this listing for potential counterfeit indicators.

**Listing Details:**
- Title: {listing.title}
- Price: {listing.price}
- Description: {listing.description or NO_DESCRIPTION}
- Seller: {listing.seller_username}

**Please assess the following:**

1. **Price Analysis**: Is the price suspiciously low compared to typical market value for this stick model? Consider that used sticks should still be at least 30-50% of retail for authentic items in good condition.

2. **Image Quality**: Do these images look like:
   - Stock photos copied from retail sites?
   - Low-quality photos that hide details?
   - Genuine product photos with actual wear/use?

3. **Logo/Branding**: Look for:
   - Incorrect fonts or spacing in brand names
   - Wrong colors or proportions
   - Missing or incorrect holographic stickers
   - Poor print quality

4. **Description Red Flags**: Check for:
   - Vague or missing specifications
   - Unusual grammar/spelling (fake sellers often have these)
   - Claims that seem too good to be true
   - Missing flex, curve, or hand information

**Required Response Format (JSON only):**
{{
  "confidence": <number 0-100 representing likelihood this is counterfeit>,
  "reason": "<brief 1-2 sentence explanation of your assessment>"
}}

A confidence of 0 means definitely authentic, 100 means definitely counterfeit. Score 50+ for items with significant red flags.

Respond ONLY with the JSON object, no other text."""
