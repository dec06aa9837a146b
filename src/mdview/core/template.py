"""HTML page shell and reload scripts for rendered documents."""

from html import escape
from string import Template

LIVE_RELOAD_SCRIPT = """<script>
(function () {
    var url = (location.protocol === "https:" ? "wss://" : "ws://") + location.host + "/ws";
    function connect(reloadOnOpen) {
        var socket = new WebSocket(url);
        socket.onopen = function () {
            if (reloadOnOpen) {
                location.reload();
            }
        };
        socket.onmessage = function (event) {
            if (event.data === "reload") {
                location.reload();
            }
        };
        socket.onclose = function () {
            // Reconnect and reload once the server is reachable again
            setTimeout(function () { connect(true); }, 1000);
        };
    }
    connect(false);
})();
</script>"""

_REFRESH_SCRIPT = Template("""<script>
setInterval(function () {
    location.reload();
}, $interval_ms);
</script>""")

STYLE = """
* {
    box-sizing: border-box;
}

html, body {
    margin: 0;
    padding: 0;
    height: 100%;
}

body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    line-height: 1.6;
    color: #333;
    max-width: 800px;
    margin: 0 auto;
    padding: 20px;
}

h1, h2, h3, h4, h5, h6 {
    margin-top: 1.5em;
    margin-bottom: 0.5em;
    font-weight: 600;
}

h1 { font-size: 2em; border-bottom: 1px solid #eee; padding-bottom: 0.3em; }
h2 { font-size: 1.5em; border-bottom: 1px solid #eee; padding-bottom: 0.3em; }

code {
    background-color: #f6f8fa;
    padding: 2px 4px;
    border-radius: 3px;
    font-family: 'SF Mono', Consolas, 'Liberation Mono', Menlo, monospace;
    font-size: 0.9em;
}

pre {
    background-color: #f6f8fa;
    padding: 16px;
    border-radius: 6px;
    overflow-x: auto;
}

pre code {
    background: none;
    padding: 0;
}

blockquote {
    border-left: 4px solid #dfe2e5;
    padding-left: 16px;
    margin-left: 0;
    color: #6a737d;
}

table {
    border-collapse: collapse;
    width: 100%;
    margin: 1em 0;
}

th, td {
    border: 1px solid #dfe2e5;
    padding: 8px 12px;
    text-align: left;
}

th {
    background-color: #f6f8fa;
    font-weight: 600;
}

img {
    max-width: 100%;
    height: auto;
}

.task-list-item {
    list-style-type: none;
}

.task-list-item input[type="checkbox"] {
    margin-right: 0.5em;
}

.footnotes {
    font-size: 0.9em;
    border-top: 1px solid #eee;
    margin-top: 2em;
}
"""

_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <style>$style</style>
</head>
<body>
$body
$script
</body>
</html>
""")


def refresh_script(interval: int) -> str:
    """Script reloading the page every ``interval`` seconds."""
    return _REFRESH_SCRIPT.substitute(interval_ms=interval * 1000)


def build_page(body: str, title: str, script: str = "") -> str:
    """Wrap rendered Markdown in a complete HTML document.

    Args:
        body: Rendered HTML body
        title: Page title (escaped here)
        script: Reload script to embed, if any

    Returns:
        Complete HTML document
    """
    return _PAGE.substitute(title=escape(title), style=STYLE, body=body, script=script)
