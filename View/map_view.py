# View/map_view.py
from __future__ import annotations
from typing import Callable, Optional

from PyQt6.QtCore import Qt, QPointF, QRectF, QVariantAnimation, QEasingCurve
from PyQt6.QtGui import QPainter, QPen, QColor, QBrush, QFont, QFontMetricsF, QWheelEvent, QPainterPath
from PyQt6.QtPositioning import QGeoPositionInfo, QGeoPositionInfoSource
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsScene, QGraphicsView

from Model.annotations import UserLocationAnnotation
from Model.locations import Coordinate
from Model.projection import SceneProjection

_IGNORE_TRANSFORM = QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations


class MapViewDelegate:
    # Callback target of a MapView. Every method is optional - override what you need.
    def map_view_did_select(self, map_view: "MapView", view: "AnnotationView") -> None:
        pass

    def map_view_did_deselect(self, map_view: "MapView", view: "AnnotationView") -> None:
        pass

    def map_view_view_for_annotation(self, map_view: "MapView", annotation) -> Optional["AnnotationView"]:
        return None  # None -> the map view uses its default view

    def map_view_callout_accessory_control_tapped(self, map_view: "MapView", view: "AnnotationView", control) -> None:
        pass


# ---------- Annotation views (screen-sized, they never scale with the zoom) ----------
class AnnotationView(QGraphicsItem):
    def __init__(self, annotation=None, reuse_identifier: str | None = None):
        super().__init__()
        self.annotation = annotation
        self.reuse_identifier = reuse_identifier
        self.can_show_callout = False
        self._is_selected = False
        self.callout: CalloutView | None = None
        self.setFlag(_IGNORE_TRANSFORM, True)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    @property
    def is_selected(self) -> bool:
        return self._is_selected

    def set_selected(self, on: bool):
        self._is_selected = bool(on)
        self.update()

    def prepare_for_reuse(self):
        # Called when the view comes out of the reuse queue
        self.hide_callout()
        self._is_selected = False

    def show_callout(self):
        if self.callout is None:
            self.callout = CalloutView(self)
        self.callout.refresh()
        self.callout.show()

    def hide_callout(self):
        if self.callout is not None:
            self.callout.hide()

    def boundingRect(self) -> QRectF:
        return QRectF(-8, -8, 16, 16)

    def paint(self, painter, option, widget=None):
        pass


class PinAnnotationView(AnnotationView):
    def __init__(self, annotation=None, reuse_identifier: str | None = None):
        super().__init__(annotation, reuse_identifier)
        self.pin_color = QColor(220, 40, 40)
        self.setZValue(10)

    def boundingRect(self) -> QRectF:
        # pin tip sits on the coordinate (item origin)
        return QRectF(-11, -36, 22, 38)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setPen(QPen(QColor(90, 90, 90), 2))
        painter.drawLine(QPointF(0, 0), QPointF(0, -18))

        r = 9.0 if self._is_selected else 8.0
        painter.setPen(QPen(QColor(255, 255, 255), 1.5))
        painter.setBrush(QBrush(self.pin_color))
        painter.drawEllipse(QPointF(0, -25), r, r)
        # highlight
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(255, 255, 255, 140)))
        painter.drawEllipse(QPointF(-2.5, -27.5), 2.5, 2.5)


class UserLocationView(AnnotationView):
    def __init__(self, annotation=None):
        super().__init__(annotation, None)
        self.setZValue(20)

    def boundingRect(self) -> QRectF:
        return QRectF(-10, -10, 20, 20)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(0, 122, 255, 50)))
        painter.drawEllipse(QPointF(0, 0), 10, 10)
        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(QBrush(QColor(0, 122, 255)))
        painter.drawEllipse(QPointF(0, 0), 6, 6)


# ---------- Callout ----------
class CalloutAccessoryButton(QGraphicsItem):
    SIZE = 20.0

    def __init__(self, parent):
        super().__init__(parent)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    def boundingRect(self) -> QRectF:
        return QRectF(0, 0, self.SIZE, self.SIZE)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setPen(QPen(QColor(0, 122, 255), 1.5))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(self.boundingRect().adjusted(2, 2, -2, -2))
        painter.drawText(self.boundingRect(), Qt.AlignmentFlag.AlignCenter, "i")


class CalloutView(QGraphicsItem):
    _PAD = 8.0
    _ARROW = 8.0

    def __init__(self, parent: AnnotationView):
        super().__init__(parent)
        self.setZValue(100)
        self._title = ""
        self._subtitle = ""
        self._rect = QRectF()
        self.accessory = CalloutAccessoryButton(self)
        self.refresh()

    def refresh(self):
        ann = self.parentItem().annotation
        self.prepareGeometryChange()
        self._title = getattr(ann, "title", None) or ""
        self._subtitle = getattr(ann, "subtitle", None) or ""

        fm = QFontMetricsF(QFont())
        text_w = max(fm.horizontalAdvance(self._title), fm.horizontalAdvance(self._subtitle))
        line_h = fm.height()
        lines = 2 if self._subtitle else 1
        btn = CalloutAccessoryButton.SIZE
        w = text_w + btn + 3 * self._PAD
        h = max(line_h * lines, btn) + 2 * self._PAD

        # Bubble centred above the pin head
        top = -self.parentItem().boundingRect().height() - h - self._ARROW
        self._rect = QRectF(-w * 0.5, top, w, h)
        self.accessory.setPos(self._rect.right() - self._PAD - btn, self._rect.center().y() - btn * 0.5)

    def boundingRect(self) -> QRectF:
        return self._rect.adjusted(0, 0, 0, self._ARROW)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        r = self._rect
        path = QPainterPath()
        path.addRoundedRect(r, 6, 6)
        arrow = QPainterPath()
        arrow.moveTo(r.center().x() - self._ARROW, r.bottom())
        arrow.lineTo(r.center().x(), r.bottom() + self._ARROW)
        arrow.lineTo(r.center().x() + self._ARROW, r.bottom())
        arrow.closeSubpath()
        path = path.united(arrow)

        painter.setPen(QPen(QColor(180, 180, 180), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255, 240)))
        painter.drawPath(path)

        fm = QFontMetricsF(QFont())
        text_rect = QRectF(r.left() + self._PAD, r.top() + self._PAD, r.width() - CalloutAccessoryButton.SIZE - 3 * self._PAD, fm.height())
        painter.setPen(QPen(QColor(20, 20, 20)))
        painter.drawText(text_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, self._title)
        if self._subtitle:
            painter.setPen(QPen(QColor(110, 110, 110)))
            painter.drawText(text_rect.translated(0, fm.height()), Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, self._subtitle)


# ---------- The map ----------
class MapView(QGraphicsView):
    # Graticule spacing candidates in degrees
    _GRID_STEPS = (30.0, 10.0, 5.0, 2.0, 1.0, 0.5, 0.2, 0.1, 0.05, 0.02, 0.01, 0.005, 0.002, 0.001)
    _MIN_SPAN = 0.002  # scene units, roughly 300 m at the equator

    def __init__(self, parent=None, position_source_factory: Callable | None = None):
        super().__init__(parent)
        self.projection = SceneProjection()
        world = self.projection.world_size
        self._scene = QGraphicsScene(0.0, 0.0, world, world, self)
        self.setScene(self._scene)

        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.ViewportAnchor.AnchorViewCenter)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setViewportUpdateMode(QGraphicsView.ViewportUpdateMode.FullViewportUpdate)

        self._user_zoomed = False
        self._scale_min = 1.0
        self._scale_max = float(2 ** 21)
        self._region: QRectF | None = None  # last requested visible region
        self._anim: QVariantAnimation | None = None

        self._delegate = None
        self._annotations: list = []
        self._views: dict[int, AnnotationView] = {}  # id(annotation) -> view
        self._reuse_queue: dict[str, list[AnnotationView]] = {}
        self._selected: AnnotationView | None = None
        self._press_pos: QPointF | None = None

        # User location
        self._position_source_factory = position_source_factory or QGeoPositionInfoSource.createDefaultSource
        self._position_source = None
        self._shows_user_location = False
        self._user_annotation: UserLocationAnnotation | None = None

    # ---------- Public API ---------
    def set_delegate(self, delegate):
        self._delegate = delegate

    def delegate(self):
        return self._delegate

    def annotations(self) -> list:
        return list(self._annotations)

    def view_for(self, annotation) -> AnnotationView | None:
        return self._views.get(id(annotation))

    def selected_annotation(self):
        return self._selected.annotation if self._selected is not None else None

    def add_annotations(self, annotations):
        for ann in annotations:
            if self._contains(ann):
                continue
            self._annotations.append(ann)
            self._attach_view(ann)

    def remove_annotations(self, annotations):
        for ann in list(annotations):
            if not self._contains(ann):
                continue
            self._annotations = [a for a in self._annotations if a is not ann]
            view = self._views.pop(id(ann))
            if view is self._selected:
                self.deselect_annotation()
            self._enqueue_reusable_view(view)

    def show_annotations(self, annotations, animated: bool = True):
        annotations = list(annotations)
        self.add_annotations(annotations)
        bounds = self.projection.bounding_rect([a.coordinate for a in annotations], min_span=self._MIN_SPAN)
        if bounds is None:
            return
        x, y, w, h = bounds
        # 20% margin so pins at the edge stay visible
        rect = QRectF(x, y, w, h).adjusted(-w * 0.2, -h * 0.2, w * 0.2, h * 0.2)
        self.set_visible_region(rect, animated=animated)

    def dequeue_reusable_annotation_view(self, identifier: str) -> AnnotationView | None:
        queue = self._reuse_queue.get(identifier)
        if not queue:
            return None
        view = queue.pop()
        view.prepare_for_reuse()
        return view

    def select_annotation(self, annotation):
        view = self.view_for(annotation)
        if view is None or view is self._selected:
            return
        if self._selected is not None:
            self.deselect_annotation()
        self._selected = view
        view.set_selected(True)
        if view.can_show_callout and getattr(annotation, "title", None):
            view.show_callout()
        self._notify("map_view_did_select", view)

    def deselect_annotation(self):
        view = self._selected
        if view is None:
            return
        self._selected = None
        view.set_selected(False)
        view.hide_callout()
        self._notify("map_view_did_deselect", view)

    def tap_callout_accessory(self, view: AnnotationView):
        if view.callout is None or not view.callout.isVisible():
            return
        self._notify("map_view_callout_accessory_control_tapped", view, view.callout.accessory)

    # ---------- Region ---------
    def visible_region(self) -> QRectF:
        return self.mapToScene(self.viewport().rect()).boundingRect()

    def center_coordinate(self) -> Coordinate:
        c = self.mapToScene(self.viewport().rect().center())
        return self.projection.to_coordinate(c.x(), c.y())

    def set_visible_region(self, rect: QRectF, animated: bool = False):
        self._region = QRectF(rect)
        self._user_zoomed = False
        self._stop_animation()
        if not animated or not self.isVisible():
            self._fit(rect)
            return
        anim = QVariantAnimation(self)
        anim.setStartValue(self.visible_region())
        anim.setEndValue(QRectF(rect))
        anim.setDuration(450)
        anim.setEasingCurve(QEasingCurve.Type.InOutCubic)
        anim.valueChanged.connect(self._fit)
        anim.start()
        self._anim = anim

    def _stop_animation(self):
        if self._anim is not None:
            self._anim.stop()
            self._anim = None

    def _fit(self, rect: QRectF):
        self.resetTransform()
        self.fitInView(rect, Qt.AspectRatioMode.KeepAspectRatio)

    # ---------- User location ---------
    @property
    def shows_user_location(self) -> bool:
        return self._shows_user_location

    @property
    def user_location(self) -> UserLocationAnnotation | None:
        return self._user_annotation

    def set_shows_user_location(self, on: bool):
        on = bool(on)
        if on == self._shows_user_location:
            return
        self._shows_user_location = on
        if on:
            self._start_position_updates()
        else:
            if self._position_source is not None:
                self._position_source.stopUpdates()
            if self._user_annotation is not None:
                self.remove_annotations([self._user_annotation])
                self._user_annotation = None

    def update_user_location(self, coordinate: Coordinate, accuracy: float = -1.0):
        if not self._shows_user_location:
            return
        if self._user_annotation is None:
            self._user_annotation = UserLocationAnnotation(coordinate=coordinate, horizontal_accuracy=accuracy)
            self.add_annotations([self._user_annotation])
            return
        self._user_annotation.coordinate = coordinate
        self._user_annotation.horizontal_accuracy = accuracy
        view = self.view_for(self._user_annotation)
        if view is not None:
            view.setPos(*self.projection.to_scene(coordinate))

    def _start_position_updates(self):
        if self._position_source is None:
            source = self._position_source_factory(self)
            if source is None:
                print("[LOCATION] No position source available, user location stays hidden")
                return
            source.positionUpdated.connect(self._on_position_updated)
            source.errorOccurred.connect(self._on_position_error)
            self._position_source = source
        self._position_source.startUpdates()

    def _on_position_updated(self, info: QGeoPositionInfo):
        coord = info.coordinate()
        if not coord.isValid():
            return
        accuracy = -1.0
        if info.hasAttribute(QGeoPositionInfo.Attribute.HorizontalAccuracy):
            accuracy = info.attribute(QGeoPositionInfo.Attribute.HorizontalAccuracy)
        self.update_user_location(Coordinate(coord.latitude(), coord.longitude()), accuracy)

    def _on_position_error(self, err):
        print(f"[LOCATION] Position source error: {err}")

    # ---------- Internals ---------
    def _contains(self, annotation) -> bool:
        return any(a is annotation for a in self._annotations)

    def _notify(self, name: str, *args):
        cb = getattr(self._delegate, name, None)
        if cb is not None:
            return cb(self, *args)
        return None

    def _attach_view(self, annotation):
        view = self._notify("map_view_view_for_annotation", annotation)
        if view is None:
            view = self._default_view_for(annotation)
        view.annotation = annotation
        view.setPos(*self.projection.to_scene(annotation.coordinate))
        if view.scene() is None:
            self._scene.addItem(view)
        view.show()
        self._views[id(annotation)] = view

    @staticmethod
    def _default_view_for(annotation) -> AnnotationView:
        if isinstance(annotation, UserLocationAnnotation):
            return UserLocationView(annotation)
        return PinAnnotationView(annotation)

    def _enqueue_reusable_view(self, view: AnnotationView):
        if view.scene() is not None:
            self._scene.removeItem(view)
        view.annotation = None
        if view.reuse_identifier:
            self._reuse_queue.setdefault(view.reuse_identifier, []).append(view)

    def _hit(self, pos):
        item = self.itemAt(pos.toPoint())
        # walk up: accessory button -> callout -> annotation view
        while item is not None and not isinstance(item, (CalloutAccessoryButton, AnnotationView)):
            item = item.parentItem()
        return item

    # ---------- Events ---------
    def mousePressEvent(self, e):
        if e.button() == Qt.MouseButton.LeftButton:
            item = self._hit(e.position())
            if isinstance(item, CalloutAccessoryButton):
                self.tap_callout_accessory(item.parentItem().parentItem())
                e.accept()
                return
            if isinstance(item, AnnotationView):
                self.select_annotation(item.annotation)
                e.accept()
                return
            # the user takes over, a running fit-all must not undo the drag
            self._stop_animation()
            self._press_pos = e.position()
        super().mousePressEvent(e)

    def mouseReleaseEvent(self, e):
        if e.button() == Qt.MouseButton.LeftButton and self._press_pos is not None:
            moved = (e.position() - self._press_pos).manhattanLength()
            self._press_pos = None
            if moved < 4:
                # plain click on the map
                self.deselect_annotation()
            else:
                self._user_zoomed = True
        super().mouseReleaseEvent(e)

    def wheelEvent(self, e: QWheelEvent):
        self._user_zoomed = True
        self._stop_animation()
        angle = e.angleDelta().y()
        if angle == 0:
            return
        factor = 1.0015 ** angle
        m = self.transform()
        current = (m.m11() + m.m22()) * 0.5
        new = max(self._scale_min, min(self._scale_max, current * factor))
        factor = new / current
        self.scale(factor, factor)

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        # keep the requested region framed until the user takes over
        if not self._user_zoomed and self._region is not None:
            self._fit(self._region)

    def drawBackground(self, painter, rect):
        painter.fillRect(rect, QColor(236, 232, 222))
        world = self.projection.world_size
        area = rect.intersected(self._scene.sceneRect())
        if area.isEmpty():
            return

        span_deg = area.width() * 360.0 / world
        step = self._GRID_STEPS[-1]
        for s in self._GRID_STEPS:
            if span_deg / s <= 12:
                step = s
                break

        pen = QPen(QColor(190, 196, 205), 0)  # width 0 = cosmetic hairline
        painter.setPen(pen)

        # meridians
        west = self.projection.to_coordinate(area.left(), area.center().y()).longitude
        east = self.projection.to_coordinate(area.right(), area.center().y()).longitude
        lon = (west // step) * step
        while lon <= east:
            x = (lon + 180.0) / 360.0 * world
            painter.drawLine(QPointF(x, area.top()), QPointF(x, area.bottom()))
            lon += step

        # parallels
        north = self.projection.to_coordinate(area.center().x(), area.top()).latitude
        south = self.projection.to_coordinate(area.center().x(), area.bottom()).latitude
        lat = (south // step) * step
        while lat <= north:
            _, y = self.projection.to_scene(Coordinate(lat, 0.0))
            painter.drawLine(QPointF(area.left(), y), QPointF(area.right(), y))
            lat += step
