"""Lightweight local HTTP API for the dashboard UI: context, query routing and search."""

from typing import Optional
import asyncio
from dataclasses import asdict
import threading
from flask import Flask, request, jsonify

from .config import API_PORT
from .registry import AdapterRegistry


_app_instance: Optional[Flask] = None
_server_thread: Optional[threading.Thread] = None


def create_app(registry: AdapterRegistry) -> Flask:
	app = Flask("dashboard_agent_api")

	@app.get("/health")
	def health():
		return jsonify({"status": "ok"})

	# Basic CORS for the local dashboard renderer
	@app.after_request
	def add_cors_headers(response):
		response.headers["Access-Control-Allow-Origin"] = "*"
		response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
		response.headers["Access-Control-Allow-Headers"] = "Content-Type"
		return response

	@app.route("/context", methods=["GET", "OPTIONS"])
	def context():
		if request.method == "OPTIONS":
			return ("", 204)
		return jsonify(registry.get_aggregated_context().to_dict())

	@app.route("/context/summary", methods=["GET", "OPTIONS"])
	def context_summary():
		if request.method == "OPTIONS":
			return ("", 204)
		return jsonify({"summary": registry.get_context_summary()})

	@app.route("/context/detailed", methods=["GET", "OPTIONS"])
	def context_detailed():
		"""Detailed context, optionally limited with ?apps=notes,streaks."""
		if request.method == "OPTIONS":
			return ("", 204)
		apps = request.args.get('apps', '') or ''
		app_names = [name.strip() for name in apps.split(',') if name.strip()] or None
		return jsonify({"context": registry.get_detailed_context(app_names)})

	@app.route("/query", methods=["GET", "OPTIONS"])
	def query():
		if request.method == "OPTIONS":
			return ("", 204)
		text = (request.args.get('text', '') or '').strip()
		if not text:
			return jsonify({'status': 'error', 'message': 'empty query'}), 400
		result = asyncio.run(registry.get_response_for_query(text))
		if result is None:
			return jsonify({"app_name": None, "response": None})
		return jsonify(result.to_dict())

	@app.route("/search", methods=["GET", "OPTIONS"])
	def search():
		if request.method == "OPTIONS":
			return ("", 204)
		text = request.args.get('text', '') or ''
		matches = asyncio.run(registry.search_all(text))
		return jsonify({
			"results": {
				app_name: [asdict(match) for match in app_matches]
				for app_name, app_matches in matches.items()
			}
		})

	@app.route("/totals", methods=["GET", "OPTIONS"])
	def totals():
		if request.method == "OPTIONS":
			return ("", 204)
		agg_type = request.args.get('type') or None
		return jsonify({"totals": [item.to_dict() for item in registry.get_cross_app_totals(agg_type)]})

	@app.route("/keywords", methods=["GET", "OPTIONS"])
	def keywords():
		if request.method == "OPTIONS":
			return ("", 204)
		return jsonify({"keywords": registry.get_all_keywords()})

	return app


def start_api_server(registry: AdapterRegistry, port: int = API_PORT) -> None:
	"""
	Start the local API server in a background thread.
	Only binds to 127.0.0.1.
	"""
	global _app_instance, _server_thread
	if _server_thread and _server_thread.is_alive():
		return
	_app_instance = create_app(registry)

	def run():
		_app_instance.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

	_server_thread = threading.Thread(target=run, daemon=True)
	_server_thread.start()
