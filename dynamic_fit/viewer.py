"""
Live arc tracker.

Three threads share two ``Dynamic`` engines (x and y coordinate):

  SampleProducer   threading.Thread   update()      write path
  FitWorker        QThread            process()     compute path
  TrackerWindow    GUI thread         evaluate()    read path
"""

from __future__ import annotations

import logging
import math
import sys
import threading
from typing import Optional

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import QObject, QThread, QTimer, Qt, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from .dynamic import NO_FIT, Dynamic, DynamicError, EmptyWindowError, FitDiagnostics, Range
from .latex_gen import PolynomialLatex
from .settings import TrackerSettings
from .trajectory import ArcTrajectory

logger = logging.getLogger(__name__)

CURVE_POINTS: int = 200


# ===========================================================================
# Producer
# ===========================================================================

class SampleProducer(threading.Thread):
    """Feeds arc positions (plus optional noise) into the x / y engines."""

    def __init__(self, X: Dynamic, Y: Dynamic, arc: ArcTrajectory,
                 period: float, noise: float = 0.0) -> None:
        super().__init__(daemon=True, name="sample-producer")
        self.X = X
        self.Y = Y
        self.arc = arc
        self.period = period
        self.noise = noise
        self.stop_flag = threading.Event()
        self.paused = threading.Event()
        self.reset_flag = threading.Event()
        self._rng = np.random.default_rng()
        self._k = 0

    def run(self) -> None:
        while not self.stop_flag.wait(self.period):
            if self.reset_flag.is_set():
                # cleared here so no update with an old time follows the clear
                self.X.clear()
                self.Y.clear()
                self._k = 0
                self.reset_flag.clear()
            if self.paused.is_set():
                continue
            t = self._k * self.period
            x, y = self.arc.position(t)
            if self.noise > 0:
                x += float(self._rng.normal(0.0, self.noise))
                y += float(self._rng.normal(0.0, self.noise))
            self.X.update(t, x)
            self.Y.update(t, y)
            self._k += 1

    def restart(self) -> None:
        self.reset_flag.set()

    def stop(self) -> None:
        self.stop_flag.set()


# ===========================================================================
# Background worker
# ===========================================================================

class FitWorker(QThread):
    """Refits both engines whenever their windows change."""

    fitted = Signal(object, object)
    error = Signal(str)

    def __init__(self, X: Dynamic, Y: Dynamic, idle_ms: int = 5,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._X = X
        self._Y = Y
        self._idle_ms = idle_ms
        self._stop = False

    def run(self) -> None:
        while not self._stop:
            try:
                dx = self._process(self._X)
                dy = self._process(self._Y)
            except DynamicError as exc:
                self.error.emit(str(exc))
                return
            if dx.iterations or dy.iterations:
                self.fitted.emit(dx, dy)
            else:
                self.msleep(self._idle_ms)

    @staticmethod
    def _process(engine: Dynamic) -> FitDiagnostics:
        try:
            return engine.process()
        except EmptyWindowError:
            # producer cleared the window; wait for the next sample
            return NO_FIT

    def stop(self) -> None:
        self._stop = True


# ===========================================================================
# Main window
# ===========================================================================

class TrackerWindow(QMainWindow):

    def __init__(self, settings: Optional[TrackerSettings] = None) -> None:
        super().__init__()
        self.setWindowTitle("Sliding-window polynomial tracker")
        pg.setConfigOptions(antialias=True, background="w", foreground="k")
        self._settings = settings or TrackerSettings()
        s = self._settings

        self._arc = ArcTrajectory(s.radius, math.radians(s.angular_velocity_deg))
        self._X = s.make_engine()
        self._Y = s.make_engine()
        self._latex_gen = PolynomialLatex(s.latex_approx, s.latex_decimals)

        self._producer = SampleProducer(self._X, self._Y, self._arc, s.sample_period, s.noise)
        self._worker: Optional[FitWorker] = None

        self._build_ui()
        self._configure_plot()

        self.timer = QTimer(self)
        self.timer.timeout.connect(self._redraw)
        self.timer.start(int(1000 / s.refresh_hz))

        self._producer.start()
        self._start_worker()

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root = QHBoxLayout(central)

        left = QVBoxLayout()
        self._plot_widget = pg.PlotWidget()
        self._plot_widget.addLegend(offset=(10, 10))
        left.addWidget(self._plot_widget)

        btn_row = QHBoxLayout()
        self._clear_btn = QPushButton("Clear")
        self._pause_btn = QPushButton("Pause")
        self._pause_btn.setCheckable(True)
        self._status_lbl = QLabel("Waiting for samples")
        self._status_lbl.setStyleSheet("color: gray; font-style: italic;")
        self._clear_btn.clicked.connect(self.clear_window)
        self._pause_btn.toggled.connect(self._toggle_pause)
        for widget in (self._clear_btn, self._pause_btn, self._status_lbl):
            btn_row.addWidget(widget)
        left.addLayout(btn_row)
        root.addLayout(left, 3)

        right = QVBoxLayout()
        right.addWidget(QLabel("Fitted coordinates:"))
        self._latex_output = QTextEdit()
        self._latex_output.setReadOnly(True)
        self._latex_output.setFontFamily("Courier New")
        right.addWidget(self._latex_output)
        root.addLayout(right, 1)

        self._samples_item = self._plot_widget.plot(
            [], [], pen=None, symbol="o", symbolSize=7,
            symbolBrush=(100, 120, 255), name="Samples",
        )
        self._arc_item = self._plot_widget.plot(
            [], [], pen=pg.mkPen((180, 180, 180), width=1, style=Qt.PenStyle.DashLine),
            name="True arc",
        )
        self._fit_item = self._plot_widget.plot(
            [], [], pen=pg.mkPen((80, 200, 80), width=2), name="Fit [To .. Tt]",
        )
        self._extrap_item = self._plot_widget.plot(
            [], [], pen=pg.mkPen((255, 140, 0), width=2), name="Extrapolation [Tt .. Tx]",
        )
        self._head_item = self._plot_widget.plot(
            [], [], pen=None, symbol="x", symbolSize=12,
            symbolBrush=(220, 80, 80), symbolPen=(220, 80, 80), name="Horizon",
        )

    def _configure_plot(self) -> None:
        r = self._settings.radius
        self._plot_widget.setLabel("left", "y")
        self._plot_widget.setLabel("bottom", "x")
        self._plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self._plot_widget.setAspectLocked(True)
        self._plot_widget.setXRange(-1.3 * r, 1.3 * r)
        self._plot_widget.setYRange(-1.3 * r, 1.3 * r)
        phi = np.linspace(0.0, 2.0 * math.pi, CURVE_POINTS)
        self._arc_item.setData(r * np.cos(phi), r * np.sin(phi))

    # ------------------------------------------------------------------
    # Worker lifecycle
    # ------------------------------------------------------------------

    def _start_worker(self) -> None:
        self._worker = FitWorker(self._X, self._Y, parent=self)
        self._worker.fitted.connect(self._on_fitted)
        self._worker.error.connect(self._on_fit_error)
        self._worker.start()

    def _stop_worker(self) -> None:
        if self._worker is not None:
            self._worker.stop()
            self._worker.wait(2000)

    def _on_fitted(self, dx: FitDiagnostics, dy: FitDiagnostics) -> None:
        self._status_lbl.setText(
            f"n={self._X.length()}  rank x/y {dx.rank}/{dy.rank}  "
            f"cond {max(dx.condition, dy.condition):.2e}  "
            f"{dx.elapsed_us + dy.elapsed_us:.0f} us"
        )
        self._status_lbl.setStyleSheet("color: green; font-style: italic;")
        self._latex_output.setPlainText(
            "x: " + self._latex_gen.state(self._X.snapshot())
            + "\n\ny: " + self._latex_gen.state(self._Y.snapshot())
        )

    def _on_fit_error(self, msg: str) -> None:
        logger.error("fit worker stopped: %s", msg)
        self._status_lbl.setText(f"Fit error: {msg}")
        self._status_lbl.setStyleSheet("color: red; font-style: italic;")

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _redraw(self) -> None:
        _, x = self._X.samples()
        _, y = self._Y.samples()
        n = min(x.size, y.size)
        self._samples_item.setData(x[:n], y[:n])

        sx, sy = self._X.snapshot(), self._Y.snapshot()
        if not (sx.defined and sy.defined) or sx.span <= 0:
            for item in (self._fit_item, self._extrap_item, self._head_item):
                item.setData([], [])
            return
        inside = np.linspace(sx.t_start, sx.t_end, CURVE_POINTS)
        ahead = np.linspace(sx.t_end, sx.t_horizon, CURVE_POINTS // 2)
        self._fit_item.setData(self._X(inside), self._Y(inside))
        self._extrap_item.setData(self._X(ahead), self._Y(ahead))

        hx, where = self._X.evaluate_ranged(sx.t_horizon)
        hy = float(self._Y(sx.t_horizon))
        if where is Range.UNDEFINED:
            self._head_item.setData([], [])
        else:
            self._head_item.setData([hx], [hy])

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def clear_window(self) -> None:
        self._producer.restart()
        self._status_lbl.setText("Cleared")
        self._status_lbl.setStyleSheet("color: gray; font-style: italic;")

    def _toggle_pause(self, paused: bool) -> None:
        if paused:
            self._producer.paused.set()
            self._pause_btn.setText("Resume")
        else:
            self._producer.paused.clear()
            self._pause_btn.setText("Pause")

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        self.timer.stop()
        self._producer.stop()
        self._stop_worker()
        self._producer.join(timeout=2.0)
        super().closeEvent(event)


# ===========================================================================
# Entry point
# ===========================================================================

def main(settings: Optional[TrackerSettings] = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    window = TrackerWindow(settings)
    window.resize(1100, 650)
    window.show()
    return app.exec()
