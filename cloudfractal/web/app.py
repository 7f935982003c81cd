"""
HTTP front end for the renderer.

Routes:
    GET /                  redirect to /mandelbrot
    GET /mandelbrot        HTML entry page
    GET /mandelbrot/image  rendered PNG
    GET /favicon.ico       static icon
"""

import logging
from typing import Optional

from flask import Flask, Response, jsonify, redirect, request, send_from_directory, url_for

from ..api import FractalRenderer
from ..config import Settings
from ..errors import FractalError, InvalidParameter, ResourceExhausted, RowComputationFailed
from ..rendering.image_output import ImageExporter

logger = logging.getLogger(__name__)

# Query parameter name -> normalize_parameters() keyword
QUERY_PARAMETERS = {
    'width': 'width',
    'height': 'height',
    'centerX': 'center_x',
    'centerY': 'center_y',
    'zoom': 'zoom',
    'palette': 'palette',
    'maxIterations': 'max_iterations',
}


def _error_response(error: FractalError, status: int):
    response = jsonify(error=type(error).__name__, message=str(error))
    response.status_code = status
    return response


def create_app(settings: Optional[Settings] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        settings: Runtime settings (read from the environment if None)

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    renderer = FractalRenderer(settings or Settings.from_env())
    exporter = ImageExporter()
    app.extensions['cloudfractal.renderer'] = renderer

    @app.errorhandler(InvalidParameter)
    def handle_invalid_parameter(error):
        logger.warning(f"Rejected request: {error}")
        return _error_response(error, 400)

    @app.errorhandler(ResourceExhausted)
    def handle_resource_exhausted(error):
        logger.warning(f"Rejected request: {error}")
        return _error_response(error, 413)

    @app.errorhandler(RowComputationFailed)
    def handle_row_failure(error):
        logger.error(f"Render failed: {error}")
        return _error_response(error, 500)

    @app.route('/')
    def index():
        return redirect(url_for('mandelbrot_page'), code=307)

    @app.route('/mandelbrot')
    def mandelbrot_page():
        return app.send_static_file('mandelbrot.html')

    @app.route('/mandelbrot/image')
    def mandelbrot_image():
        raw = {kwarg: request.args.get(name) for name, kwarg in QUERY_PARAMETERS.items()}
        render_request = renderer.normalize(**raw)
        if render_request.width == 0 or render_request.height == 0:
            raise InvalidParameter('size', (render_request.width, render_request.height),
                                   "an empty image cannot be encoded as PNG")

        grid = renderer.render(render_request)
        return Response(exporter.encode_png(grid), mimetype='image/png')

    @app.route('/favicon.ico')
    def favicon():
        return send_from_directory(app.static_folder, 'favicon.ico', mimetype='image/x-icon')

    return app
