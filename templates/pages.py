"""
Page Rendering Templates

The single-page UI served at /. Result cards are rendered client-side from
the /api/analyze response; the risk bands are defined here once and passed
to the page script.
"""

import json
from typing import List, Tuple

# (minimum confidence, label, color), highest band first
RISK_BANDS: List[Tuple[int, str, str]] = [
    (80, "High Risk", "#ef4444"),
    (60, "Medium-High Risk", "#f97316"),
    (40, "Medium Risk", "#eab308"),
    (0, "Low Risk", "#22c55e"),
]


def risk_level(confidence: int) -> Tuple[str, str]:
    """(label, color) for a confidence score"""
    for minimum, label, color in RISK_BANDS:
        if confidence >= minimum:
            return label, color
    return RISK_BANDS[-1][1], RISK_BANDS[-1][2]


def render_index_page(default_threshold: int = 50) -> str:
    """Render the seller analysis page"""
    bands_json = json.dumps([{"min": minimum, "label": label, "color": color} for minimum, label, color in RISK_BANDS])

    return f'''<!DOCTYPE html>
<html><head>
<title>Hockey Stick Counterfeit Checker</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>
body {{ font-family: system-ui; background: #0f0f0f; color: #e0e0e0; padding: 20px; }}
.container {{ max-width: 1000px; margin: 0 auto; }}
h1 {{ color: #fff; margin-bottom: 5px; }}
.subtitle {{ color: #888; margin-bottom: 25px; }}
.panel {{ background: #1a1a1a; border: 1px solid #2a2a2a; border-radius: 12px; padding: 20px; margin-bottom: 20px; }}
label {{ color: #aaa; font-size: 13px; display: block; margin-bottom: 8px; }}
textarea {{ width: 100%; min-height: 100px; background: #0f0f0f; color: #e0e0e0; border: 1px solid #333; border-radius: 8px; padding: 10px; font-family: monospace; box-sizing: border-box; }}
input[type=range] {{ width: 100%; }}
.row {{ display: flex; gap: 10px; align-items: center; margin-top: 15px; }}
button {{ background: #6366f1; color: #fff; border: none; border-radius: 8px; padding: 10px 20px; font-weight: 600; cursor: pointer; }}
button:disabled {{ opacity: 0.5; cursor: default; }}
button.secondary {{ background: #252540; }}
.errors {{ background: #2a1515; border: 1px solid #ef444455; color: #fca5a5; border-radius: 8px; padding: 12px 15px; margin-bottom: 20px; display: none; }}
.card {{ display: flex; gap: 15px; background: #1a1a1a; border: 1px solid #2a2a2a; border-radius: 12px; overflow: hidden; margin-bottom: 12px; }}
.card img {{ width: 160px; height: 160px; object-fit: cover; background: #0f0f0f; flex-shrink: 0; }}
.card .body {{ padding: 15px; flex: 1; }}
.card h3 {{ color: #fff; margin: 0 0 6px; font-size: 16px; }}
.card .meta {{ color: #888; font-size: 12px; }}
.card a {{ color: #60a5fa; text-decoration: none; font-size: 13px; }}
.badge {{ float: right; text-align: center; border-radius: 8px; padding: 8px 12px; border: 1px solid; }}
.badge .pct {{ font-size: 22px; font-weight: bold; }}
.badge .lbl {{ font-size: 11px; text-transform: uppercase; letter-spacing: 0.05em; }}
.reason {{ background: #0f0f0f; border-radius: 6px; padding: 10px; margin-top: 10px; font-size: 13px; color: #ccc; }}
</style>
</head><body>
<div class="container">
<h1>Hockey Stick Counterfeit Checker</h1>
<div class="subtitle">Scores SidelineSwap seller listings for counterfeit indicators</div>

<div class="panel">
    <label for="usernames">Seller usernames (one per line or comma separated)</label>
    <textarea id="usernames" placeholder="seller_one&#10;seller_two"></textarea>
    <label for="threshold" style="margin-top:15px">Minimum confidence: <span id="threshold-value">{default_threshold}</span>%</label>
    <input type="range" id="threshold" min="0" max="100" value="{default_threshold}">
    <div class="row">
        <button id="analyze">Analyze Sellers</button>
        <button id="export" class="secondary" disabled>Export CSV</button>
        <span id="status" class="meta"></span>
    </div>
</div>

<div id="errors" class="errors"></div>
<div id="results"></div>
</div>

<script>
const RISK_BANDS = {bands_json};
let lastResults = [];

function riskLevel(confidence) {{
    return RISK_BANDS.find(b => confidence >= b.min) || RISK_BANDS[RISK_BANDS.length - 1];
}}

function escapeHtml(text) {{
    return String(text == null ? '' : text)
        .replace(/&/g, '&amp;')
        .replace(/</g, '&lt;')
        .replace(/>/g, '&gt;')
        .replace(/"/g, '&quot;')
        .replace(/'/g, '&#39;');
}}

function renderCard(r) {{
    const risk = riskLevel(r.confidence);
    const img = r.image_url ? `<img src="${{escapeHtml(r.image_url)}}" alt="${{escapeHtml(r.title)}}">` : '';
    return `<div class="card">${{img}}<div class="body">
        <div class="badge" style="color:${{risk.color}};border-color:${{risk.color}}55;background:${{risk.color}}1a">
            <div class="pct">${{r.confidence}}%</div><div class="lbl">${{risk.label}}</div></div>
        <h3>${{escapeHtml(r.title)}}</h3>
        <div class="meta">Item ID: ${{escapeHtml(r.item_id)}}</div>
        <a href="${{escapeHtml(r.url)}}" target="_blank" rel="noopener noreferrer">View on SidelineSwap</a>
        <div class="reason"><span class="meta">Analysis: </span>${{escapeHtml(r.reason)}}</div>
    </div></div>`;
}}

document.getElementById('threshold').addEventListener('input', e => {{
    document.getElementById('threshold-value').textContent = e.target.value;
}});

document.getElementById('analyze').addEventListener('click', async () => {{
    const usernames = document.getElementById('usernames').value
        .split(/[\\n,]/).map(u => u.trim()).filter(Boolean);
    const threshold = parseInt(document.getElementById('threshold').value, 10);
    const button = document.getElementById('analyze');
    const errorsEl = document.getElementById('errors');
    const status = document.getElementById('status');

    button.disabled = true;
    status.textContent = 'Analyzing... this can take a minute per seller';
    errorsEl.style.display = 'none';

    try {{
        const resp = await fetch('/api/analyze', {{
            method: 'POST',
            headers: {{'Content-Type': 'application/json'}},
            body: JSON.stringify({{usernames, threshold}}),
        }});
        const data = await resp.json();
        lastResults = data.results || [];
        document.getElementById('results').innerHTML = lastResults.length
            ? lastResults.map(renderCard).join('')
            : '<div class="panel meta">No listings at or above the threshold.</div>';
        if (data.errors && data.errors.length) {{
            errorsEl.innerHTML = data.errors.map(escapeHtml).join('<br>');
            errorsEl.style.display = 'block';
        }}
        status.textContent = `${{lastResults.length}} flagged listings`;
    }} catch (err) {{
        errorsEl.textContent = 'Request failed: ' + err;
        errorsEl.style.display = 'block';
        status.textContent = '';
    }} finally {{
        button.disabled = false;
        document.getElementById('export').disabled = lastResults.length === 0;
    }}
}});

document.getElementById('export').addEventListener('click', async () => {{
    const resp = await fetch('/api/analyze/export', {{
        method: 'POST',
        headers: {{'Content-Type': 'application/json'}},
        body: JSON.stringify({{results: lastResults}}),
    }});
    const disposition = resp.headers.get('Content-Disposition') || '';
    const match = disposition.match(/filename="([^"]+)"/);
    const blob = await resp.blob();
    const link = document.createElement('a');
    link.href = URL.createObjectURL(blob);
    link.download = match ? match[1] : 'counterfeit-analysis.csv';
    link.click();
    URL.revokeObjectURL(link.href);
}});
</script>
</body></html>'''
