"""HTML for the multiview page.

The document is produced in two parts: the shell, which ends right before
`</body>`, and `DOCUMENT_END`. Name fragments are inserted between them.
"""

from dataclasses import dataclass
from html import escape

import orjson

from app.domain.streams.stream_models import StreamDescriptor

CAPABILITY_SUFFIX = " [extension required]"

DOCUMENT_END = """\t</body>
</html>
"""

_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def json_for_script(value) -> str:
    """JSON-encode `value` so it can sit inside an inline <script>."""
    encoded = orjson.dumps(value).decode()
    for char, replacement in _SCRIPT_ESCAPES.items():
        encoded = encoded.replace(char, replacement)
    return encoded


def initial_chat_url(descriptors: list[StreamDescriptor], has_capability: bool) -> str:
    """Chat shown on load: the first chat usable without the extension."""
    for descriptor in descriptors:
        if has_capability or not descriptor.requires_capability:
            if descriptor.requires_capability:
                # Gated chats are opened by the page script once the player is ready.
                return "about:blank"
            return descriptor.chat_url
    return "about:blank"


@dataclass(frozen=True)
class PageContext:
    descriptors: list[StreamDescriptor]
    has_capability: bool
    nonce: str
    title: str
    extension_url: str


def _player_tiles(descriptors: list[StreamDescriptor]) -> str:
    if not descriptors:
        return '<div class="box">No streams</div>'
    return "\n\t\t\t\t".join(
        f'<iframe src="{escape(d.player_url)}" name="{escape(d.id)}" frameborder="0" '
        'scrolling="no" allowfullscreen="true"></iframe>'
        for d in descriptors
    )


def _chat_options(descriptors: list[StreamDescriptor], has_capability: bool) -> str:
    options = []
    for d in descriptors:
        if has_capability or not d.requires_capability:
            options.append(f'<option value="{escape(d.chat_url)}">{escape(d.label)}</option>')
        else:
            options.append(
                f'<option value="{escape(d.chat_url)}" disabled>{escape(d.label + CAPABILITY_SUFFIX)}</option>'
            )
    return "\n\t\t\t\t\t".join(options)


def render_shell(ctx: PageContext) -> str:
    nonce = escape(ctx.nonce)
    return f"""<!DOCTYPE html>
<html lang="en">
	<head>
		<meta charset="utf-8" />
		<meta name="viewport" content="width=device-width, initial-scale=1" />
		<meta name="description" content="Watch several CHZZK, SOOP, Twitch and YouTube streams together." />
		<title>{escape(ctx.title)}</title>
		<link rel="icon" href="/favicon.ico" sizes="32x32" />
		<link rel="manifest" href="/manifest.webmanifest" />
		<style nonce="{nonce}">
			*, *::before, *::after {{ box-sizing: border-box; }}
			:root {{ color-scheme: dark; }}
			html, body {{ margin: 0; padding: 0; width: 100%; height: 100%; color: white; background: black; overflow: hidden; }}
			.container {{ display: flex; width: 100%; height: 100%; }}
			.box {{ margin-top: 16px; }}
			#streams {{ display: flex; flex-wrap: wrap; flex-grow: 1; align-items: center; align-content: center; justify-content: center; height: 100%; }}
			#streams iframe {{ flex-grow: 1; aspect-ratio: 16 / 9; }}
			#chat-container {{ display: flex; flex-direction: column; width: 350px; height: 100%; }}
			#chat-container:has(#chat[src="about:blank"]) {{ display: none; }}
			#chat-select {{ margin: 6px; padding: 8px 12px; border-radius: 40px; background: #333; color: white; }}
			#chat {{ flex-grow: 1; width: 100%; }}
			#overlay {{ display: none; position: fixed; bottom: 40px; left: calc(50% - 200px); width: 400px; padding: 8px 16px; border-radius: 32px; background: rgba(40, 40, 40, 0.8); }}
			#overlay a {{ color: white; }}
		</style>
	</head>
	<body>
		<div class="container">
			<div id="streams">
				{_player_tiles(ctx.descriptors)}
			</div>
			<div id="chat-container">
				<select id="chat-select" aria-label="Chat">
					{_chat_options(ctx.descriptors, ctx.has_capability)}
				</select>
				<iframe src="{escape(initial_chat_url(ctx.descriptors, ctx.has_capability))}" frameborder="0" scrolling="no" id="chat"></iframe>
			</div>
		</div>
		<div id="overlay">
			<a target="_blank" rel="noopener noreferrer" href="{escape(ctx.extension_url)}">Install the browser extension to log in and chat on every platform.</a>
			<button id="overlay-close" type="button">Close</button>
		</div>
		<script type="text/javascript" nonce="{nonce}">
			const hasExtension = {json_for_script(ctx.has_capability)};
			const capabilitySuffix = {json_for_script(CAPABILITY_SUFFIX)};
			const streams = document.getElementById("streams");
			const chat = document.getElementById("chat");
			const chatSelect = document.getElementById("chat-select");
			const overlay = document.getElementById("overlay");
			const iframes = streams.querySelectorAll("iframe");
			const n = iframes.length;

			function adjustLayout() {{
				const width = window.innerWidth - 8 - (chat.src !== "about:blank" ? 350 : 0);
				const height = window.innerHeight - 8;
				let bestWidth = 0;
				let bestHeight = 0;
				for (let cols = 1; cols <= n; cols++) {{
					const rows = Math.ceil(n / cols);
					let maxWidth = Math.floor(width / cols);
					let maxHeight = Math.floor(height / rows);
					if ((maxWidth * 9) / 16 < maxHeight) {{
						maxHeight = Math.floor((maxWidth * 9) / 16);
					}} else {{
						maxWidth = Math.floor((maxHeight * 16) / 9);
					}}
					if (maxWidth > bestWidth) {{
						bestWidth = maxWidth;
						bestHeight = maxHeight;
					}}
				}}
				iframes.forEach((f) => {{
					f.style.flexGrow = "0";
					f.style.width = bestWidth + "px";
					f.style.height = bestHeight + "px";
				}});
			}}

			function setName(i, name) {{
				const option = chatSelect.children[i];
				if (option) {{
					option.textContent = option.disabled ? name + capabilitySuffix : name;
				}}
			}}

			adjustLayout();
			window.addEventListener("resize", adjustLayout);
			chat.addEventListener("load", adjustLayout);
			chatSelect.addEventListener("change", (e) => {{
				chat.src = e.target.value;
			}});
			document.getElementById("overlay-close").addEventListener("click", () => {{
				overlay.style.display = "none";
				localStorage.setItem("seen-overlay", "true");
			}});
			if (!hasExtension && n && localStorage.getItem("seen-overlay") !== "true") {{
				overlay.style.display = "block";
			}}

			let init = true;
			window.addEventListener("message", (e) => {{
				if (e.origin !== "https://play.sooplive.co.kr") {{
					return;
				}}
				switch (e.data.cmd) {{
					case "PonReady":
						if (init && hasExtension && e.source === iframes[0].contentWindow) {{
							init = false;
							chat.src = chatSelect.value;
						}}
						break;
					case "PupdateBroadInfo":
						setName(Array.prototype.findIndex.call(iframes, (f) => e.source === f.contentWindow), e.data.data.nick);
						break;
				}}
			}});
		</script>
"""


def render_fragment(nonce: str, index: int, name: str) -> str:
    return (
        f'\t\t<script type="text/javascript" nonce="{escape(nonce)}">'
        f"setName({int(index)}, {json_for_script(name)});</script>\n"
    )


def render_document(ctx: PageContext) -> str:
    """Complete page with every known name already inlined."""
    return render_shell(ctx) + DOCUMENT_END
